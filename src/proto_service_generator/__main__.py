import sys

from proto_service_generator.cli import main

sys.exit(main())
