# finance/services/__init__.py
