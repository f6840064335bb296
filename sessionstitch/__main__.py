from sessionstitch.cli import main

raise SystemExit(main())
