"""
Booking Calculator Package

Pricing core for the wedding videography booking calculator.
Resolves a package selection into a total using Package → Add-ons → Discount pipeline.
"""

__version__ = "1.0.0"
