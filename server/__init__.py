"""HTTP surface for the SiteNav index service."""
