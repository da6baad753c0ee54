"""
Extension lifecycle service.

Layers, innermost first (import the module you need directly):

    data/        L0  built-in catalog
    domain/      L1  asset names and URL templates (pure)
    resolver/    L2  installed / latest versions
    detection/   L3  platform probes
    execution/   L4  HTTP, archives, aliases, install, processes
"""
