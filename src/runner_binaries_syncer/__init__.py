"""
Runner binaries syncer.

Keeps a copy of the latest GitHub Actions runner distribution for one
OS/architecture in an S3 bucket, so self-hosted runners can install from
the bucket instead of downloading from GitHub on every boot.

Run one invocation:
    python -m runner_binaries_syncer
"""

__version__ = "1.0.0"
