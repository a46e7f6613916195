"""
Seller Contact Harvester
Walks the "Sold by" seller facets of a retail category listing, opens a product
for each seller in a new tab and collects the seller's contact details.
Progress is persisted after every seller so an interrupted run resumes where it stopped.
"""

__version__ = "0.3.0"
