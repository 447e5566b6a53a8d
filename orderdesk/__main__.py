from orderdesk.main import main

main()
