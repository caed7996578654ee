"""Infrastructure helpers shared by the metakit core."""
