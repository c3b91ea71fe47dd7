#!/usr/bin/env python3
from novasite.cli import main

if __name__ == "__main__":
    main()
