"""
macrochannel: monetary transmission channel pipeline.

Fetches Eurostat and FRED series for one country, aligns them onto a monthly
panel and estimates an OLS regression and a VECM impulse response.
"""

__version__ = "0.1.0"
