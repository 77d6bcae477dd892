"""Writing and reading WACZ archives of crawled responses."""