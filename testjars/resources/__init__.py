"""Resources bundled with testjars and put on child classpaths."""
