"""The painless text of the merge scripts is part of the stored-data contract."""

from chainindexer.merge import scripts


class TestScriptBody:
    def test_without_params(self):
        assert scripts.noop_if_exists().to_body() == {"source": "return"}

    def test_with_params(self):
        body = scripts.increment("count", 3).to_body()
        assert body == {"source": "ctx._source.count += params.count", "lang": "painless", "params": {"count": 3}}

    def test_format_painless_source(self):
        assert scripts.format_painless_source("if (a) {\n\tb\r\n}") == "if (a) {b}"


class TestOverwriteFamily:
    def test_overwrite_by_timestamp(self):
        script = scripts.overwrite_by_timestamp("log", {"timestamp": 5})
        assert script.source == (
            "if ('create' == ctx.op) {ctx._source = params.log} else "
            "{if (ctx._source.containsKey('timestamp')) "
            "{if (ctx._source.timestamp <= params.log.timestamp) {ctx._source = params.log}} "
            "else {ctx._source = params.log}}"
        )
        assert script.params == {"log": {"timestamp": 5}}

    def test_delete_unless_newer(self):
        script = scripts.delete_unless_newer(900)
        assert script.source == (
            "if ('create' == ctx.op) {ctx.op = 'noop'} else "
            "{if (ctx._source.containsKey('timestamp') && ctx._source.timestamp > params.timestamp) "
            "{ctx.op = 'noop'} else {ctx.op = 'delete'}}"
        )
        assert script.to_body() == {"source": script.source, "lang": "painless", "params": {"timestamp": 900}}

    def test_overwrite_preserving_roles(self):
        script = scripts.overwrite_preserving("token", {"token": "TKN-abcd"}, ("roles",))
        assert script.source == (
            "if ('create' == ctx.op) {ctx._source = params.token} else "
            "{if (!ctx._source.containsKey('timestamp') || ctx._source.timestamp <= params.token.timestamp) "
            "{def roles = ctx._source.roles;ctx._source = params.token;"
            "if (roles != null) {ctx._source.roles = roles}}}"
        )

    def test_keep_tx_outcome(self):
        script = scripts.keep_tx_outcome({"status": "success"})
        assert script.source == (
            "if ('create' == ctx.op) {ctx._source = params.tx} else "
            "{def status = ctx._source.status;def errorEvent = ctx._source.errorEvent;"
            "def completedEvent = ctx._source.completedEvent;ctx._source = params.tx;"
            "if (status != null) {ctx._source.status = status}"
            "if (errorEvent != null) {ctx._source.errorEvent = errorEvent}"
            "if (completedEvent != null) {ctx._source.completedEvent = completedEvent}}"
        )

    def test_seed_or_update_fields(self):
        script = scripts.seed_or_update_fields("delegator", {}, ("activeStake", "activeStakeNum", "timestamp"))
        assert script.source == (
            "if ('create' == ctx.op) {ctx._source = params.delegator} else "
            "{ctx._source.activeStake = params.delegator.activeStake;"
            "ctx._source.activeStakeNum = params.delegator.activeStakeNum;"
            "ctx._source.timestamp = params.delegator.timestamp;}"
        )

    def test_patch_existing(self):
        script = scripts.patch_existing({"fee": "1", "feeNum": 0.1, "gasUsed": 5})
        assert script.source == (
            "if ('create' == ctx.op) {ctx.op = 'noop'} else "
            "{ctx._source.fee = params.fee;ctx._source.feeNum = params.feeNum;ctx._source.gasUsed = params.gasUsed;}"
        )
        assert script.params == {"fee": "1", "feeNum": 0.1, "gasUsed": 5}

    def test_set_fields(self):
        script = scripts.set_fields({"balance": "1", "balanceNum": 1.0})
        assert script.source == "ctx._source.balance = params.balance;ctx._source.balanceNum = params.balanceNum"


class TestAppendFamily:
    def test_append_to_list(self):
        script = scripts.append_to_list("upgrades", {"upgrader": "aa"})
        assert script.source == (
            "if (!ctx._source.containsKey('upgrades')) {ctx._source.upgrades = [params.elem];} "
            "else {ctx._source.upgrades.add(params.elem);}"
        )
        assert script.params == {"elem": {"upgrader": "aa"}}

    def test_append_then_set_owner(self):
        script = scripts.append_to_list(
            "ownersHistory",
            {"address": "bb"},
            semicolons=False,
            then="ctx._source.currentOwner = params.owner",
            owner="bb",
        )
        assert script.source == (
            "if (!ctx._source.containsKey('ownersHistory')) {ctx._source.ownersHistory = [params.elem]} "
            "else {ctx._source.ownersHistory.add(params.elem)}ctx._source.currentOwner = params.owner"
        )
        assert script.params == {"elem": {"address": "bb"}, "owner": "bb"}

    def test_union_into_list(self):
        script = scripts.union_into_list("data", "uris", ["dTE="], flag="nonEmptyURIs")
        assert script.source.startswith("if (ctx._source.containsKey('data')) {")
        assert "ctx._source.data.uris.add(params.uris.get(i))" in script.source
        assert script.source.endswith("ctx._source.data.nonEmptyURIs = true;}")
        assert script.params == {"uris": ["dTE="]}

    def test_roles(self):
        assert scripts.add_to_role("DCDTRoleNFTBurn", "aa").params == {"role": "DCDTRoleNFTBurn", "address": "aa"}
        assert "removeIf" in scripts.remove_from_role("DCDTRoleNFTBurn", "aa").source

    def test_apply_status_info(self):
        script = scripts.apply_status_info({"status": "fail", "errorEvent": True, "completedEvent": False})
        assert script.source.startswith("if (!params.statusInfo.status.isEmpty())")
        assert script.params["statusInfo"]["status"] == "fail"
