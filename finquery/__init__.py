"""
finquery - entity resolution, batched SEC retrieval and document ranking
for natural-language financial queries.
"""

__version__ = "0.1.0"
