"""Operation layer shared by the HTTP, stdio and REPL front ends."""

SERVER_NAME = "sqlcipher-explorer"
VERSION = "0.1.0"
