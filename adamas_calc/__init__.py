"""Grade calculations for the Adamas University 10-point scale."""
