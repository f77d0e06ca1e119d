from depsentinel.cli import main

main()
