"""Keys - signing identities and transaction sequencing."""
