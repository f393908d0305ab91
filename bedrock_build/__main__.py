from bedrock_build.cli import main

raise SystemExit(main())
