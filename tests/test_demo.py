"""Tests for the demo runner."""

import pytest
from featmatch import demo
from featmatch.matching.handler import MatchHandler
from featmatch.utils.io_handler import save_image


class TestArguments:
    """Test command line parsing and config overrides."""

    def test_defaults(self):
        """Test that defaults come from the configuration."""
        config = demo.build_config(demo.parse_args(['ref.png']))
        assert config['matching']['features'] == ['orb']
        assert config['matching']['matchers'] == ['bf']
        assert config['visualization']['max_height'] == 1000

    def test_overrides(self):
        """Test command line overrides."""
        args = demo.parse_args(['ref.png', 'a.png', 'b.png',
                                '--features', 'orb', 'sift',
                                '--matchers', 'bf', 'flann',
                                '--accept-ratio', '0.2',
                                '--max-height', '600',
                                '--resize-policy', 'halve',
                                '-v'])
        config = demo.build_config(args)
        assert args.inputs == ['a.png', 'b.png']
        assert config['matching']['features'] == ['orb', 'sift']
        assert config['matching']['matchers'] == ['bf', 'flann']
        assert config['matching']['accept_ratio'] == 0.2
        assert config['visualization']['max_height'] == 600
        assert config['visualization']['resize_policy'] == 'halve'
        assert config['logging']['level'] == 'DEBUG'

    def test_single_matcher_applies_to_all(self):
        """Test that one matcher name is repeated for every feature."""
        args = demo.parse_args(['ref.png', '--features', 'orb', 'kaze', 'brisk'])
        config = demo.build_config(args)
        assert config['matching']['matchers'] == ['bf', 'bf', 'bf']

    def test_invalid_feature(self):
        """Test that argparse rejects unknown detector names."""
        with pytest.raises(SystemExit):
            demo.parse_args(['ref.png', '--features', 'harris'])

    def test_video_and_camera_exclusive(self):
        """Test that only one stream source can be given."""
        with pytest.raises(SystemExit):
            demo.parse_args(['ref.png', '--video', 'a.mp4', '--camera', '0'])


class TestHandleKey:
    """Test interactive key handling."""

    def setup_method(self):
        self.handler = MatchHandler(['orb'], ['bf'])

    def test_no_key(self):
        """Test that a timeout keeps the current frame."""
        assert demo.handle_key(-1, self.handler, 0.1) == demo.CONTINUE

    def test_quit(self):
        """Test quit keys."""
        assert demo.handle_key(ord('q'), self.handler, 0.1) == demo.QUIT
        assert demo.handle_key(27, self.handler, 0.1) == demo.QUIT

    def test_ratio_keys(self):
        """Test raising and lowering the accept ratio."""
        assert demo.handle_key(ord('+'), self.handler, 0.1) == demo.REDRAW
        assert self.handler.accept_ratio == pytest.approx(0.6)
        assert demo.handle_key(ord('-'), self.handler, 0.25) == demo.REDRAW
        assert self.handler.accept_ratio == pytest.approx(0.35)

    def test_other_key(self):
        """Test that any other key moves on."""
        assert demo.handle_key(ord('n'), self.handler, 0.1) == demo.NEXT


class TestRun:
    """Test running the demo on image files."""

    def test_run_saves_results(self, tmp_path, textured_image, other_image):
        """Test that every frame is matched and saved."""
        handler = MatchHandler(['orb', 'brisk'], ['bf', 'bf'])
        handler.set_ref_image(textured_image)
        frames = [('first', textured_image), ('second', other_image)]

        processed = demo.run(handler, iter(frames), max_height=1000, step=0.05,
                             output_dir=str(tmp_path))
        assert processed == 2
        assert (tmp_path / 'first_matches.jpg').exists()
        assert (tmp_path / 'second_matches.jpg').exists()

    def test_main(self, tmp_path, textured_image, other_image):
        """Test the command line entry point end to end."""
        ref = tmp_path / 'ref.png'
        inp = tmp_path / 'inputs' / 'frame.png'
        save_image(textured_image, str(ref))
        save_image(other_image, str(inp))
        out = tmp_path / 'out'

        code = demo.main([str(ref), str(inp.parent), '--features', 'orb', 'sift',
                          '--matchers', 'bf', '--output-dir', str(out)])
        assert code == 0
        assert (out / 'frame_matches.jpg').exists()

    def test_main_missing_reference(self, tmp_path):
        """Test that an unreadable reference image fails cleanly."""
        assert demo.main([str(tmp_path / 'missing.png')]) == 1

    def test_main_mismatched_lists(self, tmp_path, textured_image):
        """Test that mismatched feature and matcher lists fail cleanly."""
        ref = tmp_path / 'ref.png'
        save_image(textured_image, str(ref))
        assert demo.main([str(ref), '--features', 'orb', 'sift',
                          '--matchers', 'bf', 'bf', 'flann']) == 1

    def test_main_bad_config(self, tmp_path):
        """Test that a broken config file is reported."""
        config = tmp_path / 'bad.yaml'
        config.write_text("unknown_section: {}\n")
        assert demo.main(['ref.png', '--config', str(config)]) == 2
