import sys

from docker_backup_tool.cli import main


sys.exit(main())
