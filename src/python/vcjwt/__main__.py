from vcjwt.cli import main

main()
