#!/usr/bin/env python3
"""Development runner"""
import os
import sys

from docker_backup_tool.cli import main

if __name__ == '__main__':
    # Verbose logging and a local backup directory for local testing
    os.environ.setdefault('LOG_LEVEL', 'DEBUG')
    os.environ.setdefault('BACKUP_DIR', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'backups'))

    sys.exit(main())
