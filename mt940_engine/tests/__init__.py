"""
MT940 Engine Tests

Test suite for statement parsing:
- Line normalization and subfield tokenization
- Bank dialects and dialect selection
- Statement assembly and error policies
- Statement validation
- Configuration, exceptions and logging
"""
