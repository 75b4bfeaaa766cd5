"""Flask HTTP API and browser UI for the abbreviation expander."""
