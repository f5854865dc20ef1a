"""
Sector modules, evaluated in a fixed order:

    resources -> capital -> agriculture -> pollution -> population

Each `auxiliaries()` signature lists exactly the earlier sectors it may
read; `rates()` reads the completed auxiliary record of the pass.
"""
