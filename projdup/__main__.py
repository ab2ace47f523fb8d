from projdup.cli.main import main

main()
