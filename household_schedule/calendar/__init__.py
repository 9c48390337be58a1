"""Calendar export formats."""
