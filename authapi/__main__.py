from authapi.startup import main

main()
