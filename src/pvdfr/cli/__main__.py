from pvdfr.cli import main

main()
