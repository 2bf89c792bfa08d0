"""Readers turning raw text files into tokenized sentences."""
