"""
application - Use-case services that sit between the agent tools and
the infrastructure ports (product catalogue, product comparison).
"""
