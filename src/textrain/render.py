from __future__ import annotations
import moderngl
import numpy as np

from . import shaders as S
from .config import AppConfig
from .glyphs import GlyphAtlas
from .imageutils import PixelBuffer
from .logging import get_logger
from .rain import RainFrame


def make_tex(ctx, size, comps, data=None, dtype="f1", alignment=4):
    tex = ctx.texture(size, comps, data, dtype=dtype, alignment=alignment)
    tex.filter = (moderngl.LINEAR, moderngl.LINEAR)
    tex.repeat_x = False
    tex.repeat_y = False
    return tex


def fullscreen_quad(ctx):
    v = np.array([-1, -1, 1, -1, -1, 1, 1, 1], dtype="f4")
    return ctx.buffer(v.tobytes())


class RainRenderer:
    """Draws the background image and the raindrops on top of it."""

    def __init__(self, ctx: moderngl.Context, cfg: AppConfig, atlas: GlyphAtlas | None = None):
        self.ctx = ctx
        self.cfg = cfg
        self.logger = get_logger(__name__)
        self.atlas = atlas if atlas is not None else GlyphAtlas(cfg.font_path, cfg.font_px)

        self.prog_bg = ctx.program(
            vertex_shader=S.VS_BACKGROUND, fragment_shader=S.FS_BACKGROUND
        )
        self.prog_glyph = ctx.program(vertex_shader=S.VS_GLYPH, fragment_shader=S.FS_GLYPH)

        self.vbo = fullscreen_quad(ctx)
        self.vao_bg = ctx.simple_vertex_array(self.prog_bg, self.vbo, "in_vert")
        self.vao_glyph = ctx.simple_vertex_array(self.prog_glyph, self.vbo, "in_vert")

        self.image_tex = None
        self.glyph_textures: dict[str, moderngl.Texture] = {}

    def upload_image(self, image: PixelBuffer):
        """Reuse the background texture unless the image size changed."""
        if self.image_tex is None or self.image_tex.size != image.size:
            if self.image_tex is not None:
                self.image_tex.release()
            self.image_tex = make_tex(self.ctx, image.size, 4, image.tobytes())
            self.logger.info(f"Created {image.width}x{image.height} background texture")
        else:
            self.image_tex.write(image.tobytes())

    def glyph_texture(self, char: str):
        tex = self.glyph_textures.get(char)
        if tex is None:
            bitmap = self.atlas.get(char)
            size = (bitmap.shape[1], bitmap.shape[0])
            tex = make_tex(self.ctx, size, 1, bitmap.tobytes(), alignment=1)
            self.glyph_textures[char] = tex
        return tex

    def render(self, frame: RainFrame):
        self.ctx.viewport = (0, 0, self.cfg.width, self.cfg.height)
        self.upload_image(frame.image)
        self.image_tex.use(location=0)
        self.prog_bg["image"].value = 0
        self.vao_bg.render(moderngl.TRIANGLE_STRIP)

        self.ctx.enable(moderngl.BLEND)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA
        self.prog_glyph["glyph"].value = 0
        self.prog_glyph["size"].value = self.cfg.glyph_size
        for drop in frame.raindrops:
            self.glyph_texture(drop.glyph).use(location=0)
            self.prog_glyph["offset"].value = (drop.x, drop.y)
            self.prog_glyph["scale"].value = (drop.scale_x, drop.scale_y)
            self.prog_glyph["rotation"].value = drop.rotation
            self.prog_glyph["color"].value = tuple(drop.color)
            self.vao_glyph.render(moderngl.TRIANGLE_STRIP)
        self.ctx.disable(moderngl.BLEND)

    def clear(self):
        self.ctx.clear(0.0, 0.0, 0.0, 1.0)
