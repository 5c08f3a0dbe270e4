from prism.demo import main

main()
