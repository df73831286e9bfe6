"""
app/accommodation/__init__.py

Accommodation domain: seasonal pricing and room availability
"""
