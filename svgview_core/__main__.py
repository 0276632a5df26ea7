from svgview_core.cli import main

raise SystemExit(main())
