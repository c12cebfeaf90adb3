"""
HTTP boundary for the PetWell staff directory: application factory,
response envelope and error translation.
"""
