"""HTTP client, robots.txt and sitemap checks, URL storage, request queue and crawler."""