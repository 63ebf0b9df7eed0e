#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Generate name tag images or A4 print sheets from a roster.
"""

import nametag_sheets.cli


if __name__ == "__main__":
	nametag_sheets.cli.main()
