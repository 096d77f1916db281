#!/usr/bin/env python3
"""
ipsweep - Multithreaded IPv4 Block Scanner

Walks CIDR blocks, address ranges, address lists or an endless run of
addresses, optionally checking ports for TCP connectivity.

Usage:
    python ipsweep.py -t 192.168.1.0/24 -p 22,80,443
    python ipsweep.py -t 10.0.0.0/30 --no-check -p 80
    python ipsweep.py -t 10.0.0.1 -m up --limit 100
"""
import sys

from ipsweep.main import main

if __name__ == "__main__":
    sys.exit(main())
