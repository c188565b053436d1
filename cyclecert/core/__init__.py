"""Core cycle components: decoder, client, writer, executor, scheduler."""
