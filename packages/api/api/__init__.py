"""HTTP/JSON front end for SQLCipher Explorer."""
