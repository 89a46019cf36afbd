"""Key/value stores with expiry, in memory or in Redis, and their value codec."""