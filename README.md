# onejoin

`onejoin` finds every pair of strings in a dataset whose edit distance is
within a threshold. It can also group the strings into clusters with DBSCAN
and write one consensus string for each cluster. It was built with DNA reads
in mind.

## How it works

1. Each string is embedded several times with the CGK random-walk embedding
   (`onejoin.embedding`). Every string is embedded from several starting
   offsets, `shift` characters apart. The number of offsets is
   `ceil(k_input / shift)`.
2. Locality-sensitive hash functions take sampled bits from each embedding
   (`onejoin.candidates.create_buckets`). Strings that share a bucket become
   candidate pairs.
3. `onejoin.join.process_candidates` drops pairs whose length difference
   exceeds the threshold, pairs whose hash bits differ, and pairs of a string
   with itself. It keeps a pair only when it occurred more than `countfilter`
   times. The pairs that remain are checked with an exact banded
   edit-distance computation (`onejoin.verification.edit_distance`), spread
   over a thread pool.
4. In clustering mode, the similar pairs make up the neighbourhoods for
   DBSCAN (`onejoin.cluster.dbscan`). Each cluster is then reduced to a
   per-position majority consensus (`onejoin.cluster.consensus`). Large inputs
   are clustered chunk by chunk, and the consensus strings of all chunks are
   then clustered once more.

## Installation

```
pip install .
```

## Command line

```
onejoin -a 1 -r dataset.txt -d 0 -s 91 -c 0 --batch_size 500
onejoin -a 2 -r dataset.txt -d 0 -s 91 -c 0 --batch_size 500 --min_pts 3
```

The input file holds one string per line. `-r`, `-d`, `-s`, `-c` and `-b` are
required. When one of them is missing, the help text goes to standard error
and the command exits with status 1. `-h` prints the help and exits with 0.

| Option | Meaning |
| --- | --- |
| `-a, --alg` | `1` join (default), `2` cluster; any other value means join |
| `-r, --read` | file with the input strings |
| `-d, --device` | `0` CPU, `1` GPU, `2` both; used in the report file name |
| `-s, --samplingrange` | largest embedded position to sample |
| `-c, --countfilter` | a pair must collide more than this many times to be a candidate |
| `-b, --batch_size` | strings per batch; the input must split into at least 3 batches |
| `-n, --dataset_name` | name used in the report file name |
| `-t, --num_thread_ed_dist` | threads for edit-distance verification (0 means the number of CPUs) |
| `-p, --min_pts` | smallest neighbourhood, the point itself included, for a DBSCAN core point (default 10) |
| `-v, --verbose` | debug logging |

A timing report is written to `report-<dataset_name>-<DEVICE>-<batch_size>.csv`
in the current directory. `<DEVICE>` is `CPU`, `GPU` or `BOTH`. Clustering also
writes `consensus_results_chunk_<n>`, in which each line holds a consensus
string and the number of points in its cluster. A timing summary of the join
is printed to standard output.

## Library use

```python
from onejoin.constants import Params
from onejoin.join import onejoin
from onejoin.models import Device
from onejoin.timing import Timer

result = onejoin(strings, 500, Device.CPU, 91, 0, timer=Timer(), params=Params())
print(result.pairs, result.num_candidates, result.num_outputs)
```

`onejoin` returns a `JoinResult`. It holds the sorted distinct pairs of string
indices that lie within `params.k_input`, a device name, and the numbers of
verified candidates and of output pairs. With `write_all=True`, each pair and
its two strings are also written to `output_path` (default
`join_output_parallel.txt`). It raises `ValueError` when the input does not
make more than two batches.

`onejoin.verification.edit_distance(x, y, k)` returns the edit distance of two
sequences, or `None` when that distance is larger than `k`. It raises
`ValueError` for `k >= 20000`.

`onejoin.cluster.one_cluster` runs the whole clustering and returns a list of
`(consensus, size)` tuples. Its building blocks are `build_neighbourhoods`,
`dbscan` and `consensus`. A consensus character outside `ACGTN` raises
`ValueError`.

`onejoin.timing.Timer` accumulates per-phase times (`start`/`end`, or
`measure` as a context manager). It writes the CSV report with `write_report`
and the summary with `write_summary`.

## Parameters

`onejoin.constants.Params` is a frozen dataclass with these defaults:

| Field | Default | Meaning |
| --- | --- | --- |
| `num_str` | 7 | embeddings per string |
| `num_hash` | 16 | hash functions per embedding |
| `num_bits` | 12 | bits per hash function |
| `num_char` | 4 | alphabet size (4, 5, 25, 26 or 37) |
| `all_output_result` | `False` | write joined pairs to a file |
| `shift` | 50 | distance between embedding start offsets |
| `hash_sz` | 1000003 | second-level hash table size |
| `k_input` | 150 | edit-distance threshold |
| `clustering_chunk_size` | 100000 | strings clustered at once |

The command line always uses these defaults. To change them, call the
library.

## What it does not do

All work runs on the CPU, in Python. No GPU is used. Choosing device `1` or
`2` only logs a warning and changes the name of the report file. The work is
never split between devices.