"""
Unit tests for render, mix and mux instruction builders.
"""
from slidepipe.config import RenderConfig
from slidepipe.pipeline import stages
from slidepipe.pipeline.timing import plan_timing
from slidepipe.pipeline.transitions import synthesize_filter_graph
from slidepipe.schemas.run import Canvas, TransitionKind


class TestBuildRenderCommand:
    def test_multi_image_loops_each_image_for_its_slot(self):
        plan = plan_timing(12.0, 3)
        graph = synthesize_filter_graph(3, plan.slot_duration, TransitionKind.CROSS_DISSOLVE)
        names = ["image_0.jpg", "image_1.png", "image_2.webp"]

        argv = stages.build_render_command(names, plan, graph, RenderConfig())

        assert argv[:7] == ["-y", "-loop", "1", "-t", "4", "-i", "image_0.jpg"]
        assert argv.count("-loop") == 3
        assert argv[argv.index("-filter_complex") + 1] == graph.render()
        assert argv[argv.index("-map") + 1] == "[vout]"
        assert argv[argv.index("-pix_fmt") + 1] == "yuv420p"
        assert argv[-3:] == ["-t", "12", stages.VIDEO_ONLY]
        assert "ffmpeg" not in argv

    def test_single_image_loops_for_whole_duration(self):
        plan = plan_timing(7.5, 1)
        graph = synthesize_filter_graph(
            1, plan.slot_duration, TransitionKind.CROSS_DISSOLVE, canvas=Canvas(width=640, height=480)
        )

        argv = stages.build_render_command(["image_0.jpg"], plan, graph, RenderConfig())

        assert argv[:7] == ["-y", "-loop", "1", "-t", "7.5", "-i", "image_0.jpg"]
        assert "pad=640:480" in argv[argv.index("-filter_complex") + 1]


class TestBuildMixPlan:
    def test_no_secondary_track_passes_primary_through(self):
        plan = stages.build_mix_plan("primary_audio.mp3", None, 30, RenderConfig())

        assert plan.passthrough is True
        assert plan.argv is None
        assert plan.output_name == "primary_audio.mp3"

    def test_secondary_track_attenuated_looped_and_mixed(self):
        plan = stages.build_mix_plan(
            "primary_audio.mp3", "background_music.mp3", 30, RenderConfig()
        )

        assert plan.passthrough is False
        assert plan.output_name == stages.AUDIO_MIXED
        graph = plan.argv[plan.argv.index("-filter_complex") + 1]
        assert graph == (
            "[1:a]volume=0.3,aloop=loop=-1:size=2e+09[bg];"
            "[0:a][bg]amix=inputs=2:duration=first:dropout_transition=2"
        )
        assert plan.argv[-1] == stages.AUDIO_MIXED

    def test_zero_gain_still_mixes(self):
        plan = stages.build_mix_plan("primary_audio.wav", "background_music.mp3", 0, RenderConfig())

        assert plan.passthrough is False
        assert "volume=0," in plan.argv[plan.argv.index("-filter_complex") + 1]


class TestBuildMuxCommand:
    def test_copies_video_and_encodes_aac(self):
        argv = stages.build_mux_command("audio_mixed.wav", RenderConfig())

        assert argv[argv.index("-c:v") + 1] == "copy"
        assert argv[argv.index("-c:a") + 1] == "aac"
        assert argv[-1] == stages.OUTPUT
        inputs = [argv[i + 1] for i, arg in enumerate(argv) if arg == "-i"]
        assert inputs == [stages.VIDEO_ONLY, "audio_mixed.wav"]


def test_store_file_names():
    assert stages.image_file_name(3, "png") == "image_3.png"
    assert stages.primary_audio_name("wav") == "primary_audio.wav"
    assert stages.secondary_audio_name("m4a") == "background_music.m4a"
