from cineverse import scheduler


def test_nightly_cleanup_job_is_registered():
    job = scheduler.build_scheduler().get_job("nightly_movie_cleanup")

    assert job is not None
    assert job.func is scheduler.cleanup_expired_movies
    assert "hour='4'" in str(job.trigger)


def test_cleanup_uses_configured_grace(mocker):
    mocker.patch("cineverse.logging_.logger.setup_logger")
    mocker.patch("cineverse.metadata.factory.get_default_resolver")
    cleanup = mocker.patch(
        "cineverse.services.movies.cleanup_expired_movies", return_value=3
    )

    assert scheduler.cleanup_expired_movies() == 3
    grace = cleanup.call_args.kwargs["grace"]
    assert grace.days == scheduler.settings.MOVIE_CLEANUP_GRACE_DAYS
