VS_BACKGROUND = """
#version 330
in vec2 in_vert;
out vec2 uv;
void main(){
    gl_Position = vec4(in_vert, 0.0, 1.0);
    // image row 0 is the top of the screen
    uv = vec2((in_vert.x + 1.0) * 0.5, 1.0 - (in_vert.y + 1.0) * 0.5);
}
"""

FS_BACKGROUND = """
#version 330
in vec2 uv; out vec4 fragColor;
uniform sampler2D image;
void main(){ fragColor = vec4(texture(image, uv).rgb, 1.0); }
"""

VS_GLYPH = """
#version 330
in vec2 in_vert;
out vec2 uv;
uniform vec2 offset;
uniform vec2 scale;
uniform float rotation;
uniform float size;
void main(){
    vec2 p = in_vert * 0.5 * size * scale;
    float c = cos(rotation);
    float s = sin(rotation);
    p = vec2(c * p.x - s * p.y, s * p.x + c * p.y);
    gl_Position = vec4(p + offset, 0.0, 1.0);
    uv = vec2((in_vert.x + 1.0) * 0.5, 1.0 - (in_vert.y + 1.0) * 0.5);
}
"""

FS_GLYPH = """
#version 330
in vec2 uv; out vec4 fragColor;
uniform sampler2D glyph;
uniform vec3 color;
void main(){
    float alpha = texture(glyph, uv).r;
    fragColor = vec4(color, alpha);
}
"""
