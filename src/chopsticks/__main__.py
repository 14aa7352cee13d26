import sys

from chopsticks.demo import main

sys.exit(main())
