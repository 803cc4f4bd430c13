import sys
from chaoslattice.main import main

sys.exit(main())
