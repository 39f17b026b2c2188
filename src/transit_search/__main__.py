from transit_search.server import main

main()
