from f007th.cli import main

raise SystemExit(main())
