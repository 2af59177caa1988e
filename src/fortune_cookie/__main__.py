from fortune_cookie.main import main

main()
