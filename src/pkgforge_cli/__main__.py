from pkgforge_cli.cli import main

main()
