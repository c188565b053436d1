from cyclecert.cli.app import main

main()
