"""safeplate: food-safety inspection scraper for the Iowa public search site.

The crawl is split the same way at every level: a PageDriver owns the
browser and hands out DOM snapshots, the extractor turns snapshots into
records, and the pagination controller decides when the crawl is done.
Scoring, facility categorization and dataset merging are plain functions
over the record models.
"""
