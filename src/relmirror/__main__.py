from relmirror.cli.main import main

main()
