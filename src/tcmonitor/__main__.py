from tcmonitor.cli import main

raise SystemExit(main())
