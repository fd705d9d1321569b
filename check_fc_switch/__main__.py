from check_fc_switch.cli import main

if __name__ == "__main__":
    main()
