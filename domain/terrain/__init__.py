"""Terrain Bounded Context.

Responsible for stitching tiles into continuous outputs:
- Value Objects: Surface, Texture, TextureMap
- Services: generate_surface, generate_texture, generate_texture_map
"""
