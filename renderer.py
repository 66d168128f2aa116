import pygame


def render_frame(surface: pygame.Surface, frame, sar: float, rect: pygame.Rect) -> None:
    """
    Scale and letter-/pillar-box a raw RGB frame into `rect` of `surface`.
    A missing frame leaves the box black.
    """
    surface.fill((0, 0, 0), rect)
    if frame is None:
        return

    surf = pygame.image.frombuffer(frame.tobytes(), frame.shape[1::-1], "RGB")
    vw, vh = surf.get_size()
    scale = min(rect.w / (vw * sar), rect.h / vh)
    surf = pygame.transform.smoothscale(
        surf,
        (max(1, int(vw * scale * sar)), max(1, int(vh * scale)))
    )
    x = rect.x + (rect.w - surf.get_width()) // 2
    y = rect.y + (rect.h - surf.get_height()) // 2
    surface.blit(surf, (x, y))
