from rk.cli.app import main

main()
