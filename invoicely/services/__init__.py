"""
Domain services — numbering, totals, invoice workflow and taxes.
"""
