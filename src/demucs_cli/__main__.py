from demucs_cli.cli import main

raise SystemExit(main())
