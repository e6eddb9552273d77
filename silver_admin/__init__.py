"""Silver Admin Backend - admin console API for the silver jewellery store."""
