"""
Default collaborators that do the expensive work of a build: fetching external
files, vendoring Go modules, crawling project sources and running Docker.
"""
