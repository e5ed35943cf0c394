"""
Command-line interface for lmscope.

Tools for talking to an LMS1xx sensor from a terminal and working with capture
files offline:

- Single scans and continuous streams
- Sending individual commands
- Decoding and plotting recorded captures

Built with click; summaries are printed as rich tables.

Examples
--------
Taking a scan and recording it:
```bash
$ lmscope scan -ha 192.168.0.1 --record run.cap
```

Replaying it without the sensor:
```bash
$ lmscope scan --emulate run.cap
$ lmscope replay run.cap
$ lmscope plot run.cap --save scan.png
```

CLI Tree
--------

```
$ lmscope --tree
cli
└── command
└── plot
└── replay
└── scan
└── stream
```
"""

from .base import cli, tree_option

__all__ = ["cli", "tree_option"]
