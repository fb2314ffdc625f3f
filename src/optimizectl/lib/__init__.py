"""Library layer of optimizectl; no argument parsing or printing in here."""
