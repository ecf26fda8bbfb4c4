def heading_from_orientation(compass_heading=None, alpha=None):
    """
    Heading in degrees from an orientation event, or None if the event has neither field.
    A device compass heading wins over the generic alpha angle, which rotates the
    other way and is converted as 360 - alpha.
    """
    if compass_heading is not None:
        return float(compass_heading)
    if alpha is not None:
        return 360.0 - float(alpha)
    return None
