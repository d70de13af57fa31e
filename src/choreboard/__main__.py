from choreboard.cli.main import main

main()
