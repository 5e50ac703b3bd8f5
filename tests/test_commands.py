"""Tests for the content CLI group."""

PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 16


class TestUploadCommand:
    def test_upload_with_link_updates_store(self, app, tmp_path):
        image = tmp_path / 'hero.png'
        image.write_bytes(PNG_BYTES)
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            'content', 'upload', str(image), 'settings/hero',
            '--link', 'siteSettings', 'data.heroBackgroundImage',
        ])

        store = app.extensions['content_store']
        assert result.exit_code == 0, result.output
        assert store.site_settings.hero_background_image.startswith('/uploads/settings/hero_')

        store.save()
        assert store.remote.get_data('siteSettings')['heroBackgroundImage'] == store.site_settings.hero_background_image

    def test_upload_rejects_list_collection_link(self, app, tmp_path):
        image = tmp_path / 'p.png'
        image.write_bytes(PNG_BYTES)
        runner = app.test_cli_runner()

        result = runner.invoke(args=['content', 'upload', str(image), 'players/player_1', '--link', 'players', 'data.image'])

        assert result.exit_code == 1
        assert 'list of records' in result.output
