"""
Training domain: models, rating scales, the strength engine and rankings.

Nothing here touches storage or the network.
"""
