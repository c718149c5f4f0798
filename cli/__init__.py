"""IAMPA command line interface."""
