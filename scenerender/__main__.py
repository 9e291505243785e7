import sys

from scenerender.cli import main

sys.exit(main())
