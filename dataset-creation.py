#!/usr/bin/env python3
"""
Water-Quality Rolling Summary Dataset

Downloads and processes:
- SSI water-quality records (2000-2024)
- Monitoring site metadata (new -> legacy site codes)
- BMI sample dates

Produces one row per BMI sample with 30/90/180/365-day trailing means of
DO, conductivity, water temperature, pH, turbidity, nitrate, phosphate and
total coliform. Configuration in config.py.
"""

import sys

from wqroll.pipeline import main

# Run script
if __name__ == "__main__":
    sys.exit(main())
