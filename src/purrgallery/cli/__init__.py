"""Command line tasks for purrgallery."""
